"""Embedded Bicep templates."""

CONNECTION_API = "2025-04-01-preview"

TEMPLATES = {
    "_connection.bicep": """{% macro connection(category, target, auth_type, metadata, credentials=None) %}
resource account 'Microsoft.CognitiveServices/accounts@{{ api }}' existing = {
  name: aiAccountName
}

resource project 'Microsoft.CognitiveServices/accounts/projects@{{ api }}' existing = {
  parent: account
  name: aiProjectName
}

resource connection 'Microsoft.CognitiveServices/accounts/projects/connections@{{ api }}' = {
  parent: project
  name: connectionName
  properties: {
    category: '{{ category }}'
    target: {{ target }}
    authType: '{{ auth_type }}'
{% if credentials %}
    credentials: {
      key: {{ credentials }}
    }
{% endif %}
    isSharedToAll: true
    metadata: {
{% for key, value in metadata %}
      {{ key }}: {{ value }}
{% endfor %}
    }
  }
}
{% endmacro %}
""",

    "project.bicep": """// AI services account, project and model deployments
param location string
param tags object = {}
param aiAccountName string
param aiProjectName string
param projectDescription string = ''
param principalId string = ''
param principalType string = 'User'
param modelDeployments array = []

resource account 'Microsoft.CognitiveServices/accounts@{{ api }}' = {
  name: aiAccountName
  location: location
  tags: tags
  kind: 'AIServices'
  sku: {
    name: 'S0'
  }
  identity: {
    type: 'SystemAssigned'
  }
  properties: {
    allowProjectManagement: true
    customSubDomainName: aiAccountName
    publicNetworkAccess: 'Enabled'
  }
}

resource project 'Microsoft.CognitiveServices/accounts/projects@{{ api }}' = {
  parent: account
  name: aiProjectName
  location: location
  tags: tags
  identity: {
    type: 'SystemAssigned'
  }
  properties: {
    description: projectDescription
  }
}

@batchSize(1)
resource deployments 'Microsoft.CognitiveServices/accounts/deployments@{{ api }}' = [for deployment in modelDeployments: {
  parent: account
  name: deployment.name
  sku: deployment.sku
  properties: {
    model: deployment.model
  }
}]

// Azure AI User
var aiUserRoleId = '53ca6127-db72-4b80-b1b0-d745d6d5456d'

resource aiUser 'Microsoft.Authorization/roleAssignments@2022-04-01' = if (!empty(principalId)) {
  name: guid(project.id, principalId, aiUserRoleId)
  scope: project
  properties: {
    principalId: principalId
    principalType: principalType
    roleDefinitionId: subscriptionResourceId('Microsoft.Authorization/roleDefinitions', aiUserRoleId)
  }
}

output accountName string = account.name
output projectName string = project.name
output endpoint string = account.properties.endpoint
output projectEndpoint string = project.properties.endpoints['AI Foundry API']
""",

    "storage.bicep": """{% import '_connection.bicep' as c %}
param name string
param location string
param tags object = {}
param skuName string = 'Standard_LRS'
param aiAccountName string
param aiProjectName string
param connectionName string

resource storage 'Microsoft.Storage/storageAccounts@2023-05-01' = {
  name: name
  location: location
  tags: tags
  kind: 'StorageV2'
  sku: {
    name: skuName
  }
  properties: {
    allowBlobPublicAccess: false
    minimumTlsVersion: 'TLS1_2'
    supportsHttpsTrafficOnly: true
  }
}
{{ c.connection('AzureStorageAccount', 'storage.properties.primaryEndpoints.blob', 'AAD', [('ApiType', "'Azure'"), ('ResourceId', 'storage.id'), ('location', 'storage.location')]) }}
output accountId string = storage.id
output accountName string = storage.name
output blobEndpoint string = storage.properties.primaryEndpoints.blob
output connectionName string = connection.name
""",

    "registry.bicep": """{% import '_connection.bicep' as c %}
param name string
param location string
param tags object = {}
param skuName string = 'Basic'
param aiAccountName string
param aiProjectName string
param connectionName string
param existingResourceId string = ''
param existingLoginServer string = ''
{% if existing %}

var registryId = existingResourceId
var registryName = last(split(existingResourceId, '/'))
var loginServer = existingLoginServer
{% else %}

resource registry 'Microsoft.ContainerRegistry/registries@2023-07-01' = {
  name: name
  location: location
  tags: tags
  sku: {
    name: skuName
  }
  properties: {
    adminUserEnabled: false
    publicNetworkAccess: 'Enabled'
  }
}

var registryId = registry.id
var registryName = registry.name
var loginServer = registry.properties.loginServer
{% endif %}
{{ c.connection('ContainerRegistry', 'loginServer', 'AAD', [('ApiType', "'Azure'"), ('ResourceId', 'registryId')]) }}
output registryId string = registryId
output name string = registryName
output loginServer string = loginServer
output connectionName string = connection.name
""",

    "search.bicep": """{% import '_connection.bicep' as c %}
param name string
param location string
param tags object = {}
param skuName string = 'basic'
param aiAccountName string
param aiProjectName string
param connectionName string
param storageAccountId string = ''

resource search 'Microsoft.Search/searchServices@2024-06-01-preview' = {
  name: name
  location: location
  tags: union(tags, empty(storageAccountId) ? {} : { 'storage-account': last(split(storageAccountId, '/')) })
  sku: {
    name: skuName
  }
  identity: {
    type: 'SystemAssigned'
  }
  properties: {
    replicaCount: 1
    partitionCount: 1
    hostingMode: 'default'
    authOptions: {
      aadOrApiKey: {
        aadAuthFailureMode: 'http401WithBearerChallenge'
      }
    }
  }
}
{{ c.connection('CognitiveSearch', "'https://${search.name}.search.windows.net'", 'AAD', [('ApiType', "'Azure'"), ('ResourceId', 'search.id'), ('location', 'search.location')]) }}
output serviceId string = search.id
output serviceName string = search.name
output endpoint string = 'https://${search.name}.search.windows.net'
output connectionName string = connection.name
""",

    "bing_grounding.bicep": """{% import '_connection.bicep' as c %}
param name string
param location string = 'global'
param tags object = {}
param skuName string = '{{ sku }}'
param aiAccountName string
param aiProjectName string
param connectionName string

resource bing 'Microsoft.Bing/accounts@2020-06-10' = {
  name: name
  location: location
  tags: tags
  kind: '{{ bing_kind }}'
  sku: {
    name: skuName
  }
}
{{ c.connection('ApiKey', 'bing.properties.endpoint', 'ApiKey', [('ApiType', "'Azure'"), ('Type', "'" ~ connection_type ~ "'"), ('ResourceId', 'bing.id')], credentials='bing.listKeys().key1') }}
output accountId string = bing.id
output name string = bing.name
output endpoint string = bing.properties.endpoint
output connectionName string = connection.name
""",

    "app_insights.bicep": """param name string
param location string
param tags object = {}
param retentionInDays int = 30

resource workspace 'Microsoft.OperationalInsights/workspaces@2023-09-01' = {
  name: 'log-${name}'
  location: location
  tags: tags
  properties: {
    retentionInDays: retentionInDays
    sku: {
      name: 'PerGB2018'
    }
  }
}

resource component 'Microsoft.Insights/components@2020-02-02' = {
  name: name
  location: location
  tags: tags
  kind: 'web'
  properties: {
    Application_Type: 'web'
    WorkspaceResourceId: workspace.id
  }
}

output componentId string = component.id
output name string = component.name
output connectionString string = component.properties.ConnectionString
output workspaceId string = workspace.id
""",

    "main.bicep": """// Generated from {{ project_name }} manifest - ResourceGroup scope
targetScope = 'resourceGroup'

param location string = '{{ location }}'
param tags object = {{ tags | bicep(0) }}

module project 'project.bicep' = {
  name: 'project-deployment'
  params: {
    location: location
    tags: tags
    aiAccountName: {{ account_name | bicep(2) }}
    aiProjectName: {{ project_name | bicep(2) }}
    projectDescription: {{ project_description | bicep(2) }}
    principalId: {{ principal_id | bicep(2) }}
    principalType: {{ principal_type | bicep(2) }}
    modelDeployments: {{ model_deployments | bicep(2) }}
  }
}
{% for step in steps %}

module {{ step.symbol }} 'modules/{{ step.kind }}.bicep' = {
  name: '{{ step.kind }}-deployment'
{% if step.uses_project %}
  dependsOn: [
    project
  ]
{% endif %}
  params: {
{% for key, value in step.params %}
    {{ key }}: {{ value }}
{% endfor %}
  }
}
{% endfor %}

output projectEndpoint string = project.outputs.projectEndpoint
output dependentResources object = {
{% for key, fields in outputs %}
  {{ key }}: {
{% for field, expression in fields %}
    {{ field }}: {{ expression }}
{% endfor %}
  }
{% endfor %}
}
""",
}
